"""Shopfront backend: FastAPI application, services and data models"""
