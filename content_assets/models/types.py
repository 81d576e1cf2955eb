from datetime import datetime
from typing import Annotated

from sqlalchemy import DateTime, func
from sqlalchemy.orm import mapped_column

# Timestamp for creation, defaults to the current time on the database side
TimestampCreated = Annotated[
    datetime,
    mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    ),
]

# Timestamp for updates, defaults to the current time and updates on every modification
TimestampUpdated = Annotated[
    datetime,
    mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    ),
]

# Generic Primary Key type
PkId = Annotated[int, mapped_column(primary_key=True, autoincrement=True)]
