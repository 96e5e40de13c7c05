"""
Pydantic schemas for API request/response validation.

All schemas serialize with camelCase field names.
"""

# Re-export schemas for convenient imports.
from .city import CityResponse as CityResponse
from .common import ApiResponse as ApiResponse
from .common import CamelModel as CamelModel
from .common import PagedResponse as PagedResponse
from .person import (
    PersonConnectionRequest as PersonConnectionRequest,
)
from .person import (
    PersonConnectionResponse as PersonConnectionResponse,
)
from .person import (
    PersonCreateRequest as PersonCreateRequest,
)
from .person import (
    PersonListResponse as PersonListResponse,
)
from .person import (
    PersonResponse as PersonResponse,
)
from .person import (
    PersonUpdateRequest as PersonUpdateRequest,
)
from .person import (
    PhoneNumberRequest as PhoneNumberRequest,
)
from .person import (
    PhoneNumberResponse as PhoneNumberResponse,
)
from .report import (
    PersonConnectionReportResponse as PersonConnectionReportResponse,
)
from .report import (
    PersonConnectionSummary as PersonConnectionSummary,
)
