"""
Request type and appointment slot catalog.

Built once per process by load_catalog() and handed to the services that
need it; nothing here is mutable after construction.
"""

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

from fastapi import Request


@dataclass(frozen=True)
class RequestTypeInfo:
    label: str
    requires_appointment: bool
    required_documents: tuple[str, ...] = ()


@dataclass(frozen=True)
class WorkflowCatalog:
    request_types: Mapping[str, RequestTypeInfo]
    time_slots: tuple[str, ...]

    def get_request_type(self, key: str) -> Optional[RequestTypeInfo]:
        return self.request_types.get(key)

    def is_valid_slot(self, slot: str) -> bool:
        return slot in self.time_slots

    def slot_order(self, slot: str) -> int:
        """Position of a slot within the business day (unknown labels sort last)"""
        try:
            return self.time_slots.index(slot)
        except ValueError:
            return len(self.time_slots)


_REQUEST_TYPES = {
    # Digital requests (no appointment needed)
    "TOR": RequestTypeInfo(label="Transcript of Records", requires_appointment=False),
    "Shifting": RequestTypeInfo(label="Program Shifting", requires_appointment=False),
    "Add/Drop": RequestTypeInfo(label="Add/Drop Form", requires_appointment=False),
    # Physical visit requests (appointment needed)
    "Irregular Enrollment": RequestTypeInfo(
        label="Irregular / Transfer Enrollment",
        requires_appointment=True,
        required_documents=(
            "Grades / Transcript from Previous School",
            "Evaluation Form",
            "Certificate of Good Moral",
            "PSA Birth Certificate",
        ),
    ),
    "Document Submission": RequestTypeInfo(
        label="Document Submission",
        requires_appointment=True,
        required_documents=("Original Copy of Required Documents",),
    ),
    "Petition for Subject": RequestTypeInfo(
        label="Petition for Subject",
        requires_appointment=True,
        required_documents=(
            "Petition Form",
            "List of Petitioning Students with Signatures",
            "Course Syllabus (if applicable)",
        ),
    ),
}

# 8AM - 5PM in 30-minute intervals, no slots over the 12PM - 1PM lunch break
_TIME_SLOTS = (
    "8:00 AM - 8:30 AM",
    "8:30 AM - 9:00 AM",
    "9:00 AM - 9:30 AM",
    "9:30 AM - 10:00 AM",
    "10:00 AM - 10:30 AM",
    "10:30 AM - 11:00 AM",
    "11:00 AM - 11:30 AM",
    "11:30 AM - 12:00 PM",
    "1:00 PM - 1:30 PM",
    "1:30 PM - 2:00 PM",
    "2:00 PM - 2:30 PM",
    "2:30 PM - 3:00 PM",
    "3:00 PM - 3:30 PM",
    "3:30 PM - 4:00 PM",
    "4:00 PM - 4:30 PM",
    "4:30 PM - 5:00 PM",
)


@lru_cache(maxsize=1)
def load_catalog() -> WorkflowCatalog:
    return WorkflowCatalog(
        request_types=MappingProxyType(dict(_REQUEST_TYPES)),
        time_slots=_TIME_SLOTS,
    )


def get_catalog(request: Request) -> WorkflowCatalog:
    """Dependency returning the catalog attached to the app at startup"""
    catalog = getattr(request.app.state, "catalog", None)
    return catalog if catalog is not None else load_catalog()
