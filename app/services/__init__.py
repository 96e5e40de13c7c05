"""
Services package for the Person Directory API.

Services hold the use cases. They coordinate repositories through one
UnitOfWork per request and report every outcome as a Result.
"""

from app.services.city_service import CityService
from app.services.file_service import FileService
from app.services.person_service import (
    ConnectionData,
    PersonData,
    PersonService,
    PhoneNumberData,
)
from app.services.result import Result

__all__ = [
    "CityService",
    "ConnectionData",
    "FileService",
    "PersonData",
    "PersonService",
    "PhoneNumberData",
    "Result",
]
