"""Validation and parsing for uploaded member/claims datasets.

Uploads arrive as two raw JSON arrays. Validation reports every problem it
finds as a field-level message instead of raising, so the caller can return
the full list at once:

    members[3].risk_score is required
    claims[12]: 'ZZ' is not a valid ClaimType

Claims that reference no uploaded member are allowed. They produce a single
warning and are excluded from analysis.
"""

from dataclasses import dataclass, field
import logging
from typing import Any

from raf_intel.connectors.base import (
    REQUIRED_CLAIM_FIELDS,
    REQUIRED_MEMBER_FIELDS,
    claim_from_dict,
    member_from_dict,
)
from raf_intel.core.snapshot import DataSnapshot

logger = logging.getLogger(__name__)

# Errors listed before the rest are summarized
MAX_REPORTED_ERRORS = 50


@dataclass
class UploadValidationResult:
    """Outcome of validating an upload."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _missing_fields(record: Any, required: tuple[str, ...]) -> list[str]:
    if not isinstance(record, dict):
        return list(required)
    return [key for key in required if record.get(key) is None or record.get(key) == ""]


def _validate_members(members: list[Any]) -> tuple[list[str], set[str]]:
    errors: list[str] = []
    member_ids: set[str] = set()
    for i, record in enumerate(members):
        missing = _missing_fields(record, REQUIRED_MEMBER_FIELDS)
        if missing:
            errors.extend(f"members[{i}].{key} is required" for key in missing)
            continue
        try:
            member = member_from_dict(record)
        except (KeyError, ValueError, TypeError) as e:
            errors.append(f"members[{i}]: {e}")
            continue
        if member.age < 0:
            errors.append(f"members[{i}].age must be non-negative")
        if not 0.0 <= member.risk_score <= 1.0:
            errors.append(f"members[{i}].risk_score must be between 0 and 1")
        if member.member_id in member_ids:
            errors.append(f"members[{i}].member_id {member.member_id} is duplicated")
        member_ids.add(member.member_id)
    return errors, member_ids


def _validate_claims(claims: list[Any]) -> list[str]:
    errors: list[str] = []
    for i, record in enumerate(claims):
        missing = _missing_fields(record, REQUIRED_CLAIM_FIELDS)
        if missing:
            errors.extend(f"claims[{i}].{key} is required" for key in missing)
            continue
        try:
            claim_from_dict(record)
        except (KeyError, ValueError, TypeError) as e:
            errors.append(f"claims[{i}]: {e}")
    return errors


def validate_upload(members_raw: Any, claims_raw: Any) -> UploadValidationResult:
    """Validate an uploaded dataset without raising.

    Args:
        members_raw: Expected to be a non-empty list of member records.
        claims_raw: Expected to be a non-empty list of claim records.

    Returns:
        UploadValidationResult. ``valid`` is True only with no errors.
    """
    errors: list[str] = []
    if not isinstance(members_raw, list):
        errors.append("members must be an array")
    if not isinstance(claims_raw, list):
        errors.append("claims must be an array")
    if errors:
        return UploadValidationResult(valid=False, errors=errors)

    if not members_raw:
        errors.append("members array is empty")
    if not claims_raw:
        errors.append("claims array is empty")

    member_errors, member_ids = _validate_members(members_raw)
    errors.extend(member_errors)
    errors.extend(_validate_claims(claims_raw))

    warnings: list[str] = []
    orphan_count = sum(
        1
        for record in claims_raw
        if isinstance(record, dict) and str(record.get("member_id")) not in member_ids
    )
    if orphan_count:
        warnings.append(
            f"{orphan_count} claim(s) reference member_id not in members (ignored for analysis)"
        )

    if len(errors) > MAX_REPORTED_ERRORS:
        hidden = len(errors) - MAX_REPORTED_ERRORS
        errors = errors[:MAX_REPORTED_ERRORS] + [f"... and {hidden} more error(s)"]

    if errors:
        logger.info(f"Upload rejected with {len(errors)} error(s)")
    return UploadValidationResult(valid=not errors, errors=errors, warnings=warnings)


def build_upload_snapshot(members_raw: list[dict[str, Any]], claims_raw: list[dict[str, Any]]) -> DataSnapshot:
    """Parse a validated upload into a new snapshot.

    Raises:
        KeyError, ValueError: If a record is malformed. Call
            :func:`validate_upload` first.
    """
    members = [member_from_dict(record) for record in members_raw]
    claims = [claim_from_dict(record) for record in claims_raw]
    snapshot = DataSnapshot.build(members, claims, source="upload")
    logger.info(
        f"Upload parsed: {snapshot.member_count} members, {len(snapshot.claims)} claims, "
        f"{snapshot.orphan_claim_count} orphan claims"
    )
    return snapshot
