"""
Shared schema building blocks.
"""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, PlainSerializer

from marketchat.utils.datetime_utils import ensure_utc, to_iso_utc


# Timestamps come back naive from some drivers; always emit ISO 8601 with a Z suffix
UTCDateTime = Annotated[
    datetime,
    AfterValidator(ensure_utc),
    PlainSerializer(to_iso_utc, return_type=str, when_used="json"),
]
