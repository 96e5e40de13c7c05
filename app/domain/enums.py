"""
Domain enums matching the database enum columns.

These enums provide type-safe representations of the stored values
and are used throughout the application for validation and type checking.
"""

from enum import Enum


class Gender(str, Enum):
    """Gender of a person."""

    MALE = "Male"
    FEMALE = "Female"


class PhoneType(str, Enum):
    """Kind of phone number attached to a person."""

    MOBILE = "Mobile"
    OFFICE = "Office"
    HOME = "Home"


class ConnectionType(str, Enum):
    """
    Kind of relationship between two persons.

    A connection is undirected: both stored directions carry the same type.
    """

    COLLEAGUE = "Colleague"
    ACQUAINTANCE = "Acquaintance"
    RELATIVE = "Relative"
    OTHER = "Other"
