"""Shared base for SQLModel domain entities"""

from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    """Base class for all persisted entities"""
