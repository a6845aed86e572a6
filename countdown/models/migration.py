"""
Migration ledger model.

Persisted under the sentinel key once the local-to-remote migration has been
attempted. Its presence alone means "never run again".
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

LEDGER_VERSION = 1


class MigrationLedger(BaseModel):
    """Record of the one-shot migration attempt."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = LEDGER_VERSION
    migrated: bool = True
    attempted_at: Optional[str] = Field(None, alias="attemptedAt")
    record_count: int = Field(0, ge=0, alias="recordCount")
    succeeded_count: int = Field(0, ge=0, alias="succeededCount")
    failed_count: int = Field(0, ge=0, alias="failedCount")
