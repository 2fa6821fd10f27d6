"""Declarative base shared by local storage models."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
