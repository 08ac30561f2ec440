"""Multi-source vehicle lookup endpoint."""

from __future__ import annotations

from autodraft._api._common import post_model
from autodraft._constants import LOOKUP_ENDPOINT
from autodraft._transport import Transport
from autodraft.models.responses import IdentifierType, LookupResponse


async def lookup_vehicle(
    transport: Transport,
    identifier: str,
    identifier_type: IdentifierType,
) -> LookupResponse:
    """Ask the aggregation endpoint to fan out to every adapter.

    The answer's ``fields``/``sources`` are returned still encoded; the
    caller decodes them once it knows the answer is still wanted.
    """
    return await post_model(
        endpoint=LOOKUP_ENDPOINT,
        transport=transport,
        payload={"identifier": identifier, "identifierType": str(identifier_type)},
        model=LookupResponse,
    )
