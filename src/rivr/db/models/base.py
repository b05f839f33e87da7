"""Declarative base shared by all rivr tables."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
