"""
Shapes of the artifacts the built-in audits read.

The collection subsystem delivers plain JSON; audits validate the parts they
use with these models. Unknown fields are ignored so collectors can send more.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class PageUrl(BaseModel):
    """The URL artifact."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    requested_url: str
    main_document_url: str
    final_displayed_url: Optional[str] = None


class NetworkRecord(BaseModel):
    """One request from the NetworkRecords artifact. Times are in milliseconds."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    request_id: str
    url: str
    resource_type: Optional[str] = None
    status_code: int = 0
    network_request_time: float
    response_headers_end_time: Optional[float] = None
    network_end_time: Optional[float] = None
    transfer_size: int = 0
    redirect_destination: Optional[str] = None


class DomExtent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    max: int = 0


class DomStats(BaseModel):
    """The DOMStats artifact."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    total_body_elements: int
    depth: DomExtent = DomExtent()
    width: DomExtent = DomExtent()
