"""Generate a deterministic synthetic payer dataset.

Writes ``members.json`` and ``claims.json`` (no PHI, no real identifiers)
into the data directory the API loads at startup.

Usage:
    # Default: 10,000 members, claims capped at 100,000, into ./data
    python -m raf_intel.scripts.generate_synthetic_data

    # Smaller dataset into a custom directory
    python -m raf_intel.scripts.generate_synthetic_data --members 500 --out /tmp/raf-data
"""

import argparse
from datetime import date, timedelta
import json
import logging
import math
from pathlib import Path
from typing import Any

from raf_intel.connectors.json_connector import CLAIMS_FILE, MEMBERS_FILE
from raf_intel.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

US_STATES = (
    "NY", "CA", "TX", "FL", "NJ", "IL", "PA", "GA", "OH", "NC",
    "MI", "AZ", "WA", "MA", "CO", "VA", "TN", "IN", "MO", "MD",
)
PLAN_TYPES = ("Bronze", "Silver", "Gold")
PLAN_WEIGHTS = (0.4, 0.35, 0.25)
CLAIM_TYPES = ("IP", "OP", "RX")
CLAIM_TYPE_WEIGHTS = (0.1, 0.4, 0.5)
BASE_CLAIM_COST = {"IP": 8000.0, "OP": 350.0, "RX": 85.0}

CLAIMS_START = date(2024, 1, 1)
CLAIMS_SPAN_DAYS = 730
DEFAULT_MEMBERS = 10_000
DEFAULT_MAX_CLAIMS = 100_000

# (code, minimum risk score or None for chronic-flag rule, seed offset, probability)
CODED_CONDITION_RULES = (
    ("HCC_19", 0.5, 10, 0.35),
    ("HCC_18", 0.6, 11, 0.20),
    ("HCC_85", 0.7, 12, 0.12),
    ("HCC_96", None, 13, 0.15),
    ("HCC_108", 0.75, 14, 0.10),
)


def seeded_random(seed: float) -> float:
    """Deterministic pseudo-random value in [0, 1) for a seed."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def pick_weighted(seed: float, weights: tuple[float, ...]) -> int:
    r = seeded_random(seed)
    cumulative = 0.0
    for i, weight in enumerate(weights):
        cumulative += weight
        if r < cumulative:
            return i
    return len(weights) - 1


def generate_members(count: int = DEFAULT_MEMBERS) -> list[dict[str, Any]]:
    """Generate member records. Higher risk makes coded conditions more likely."""
    members = []
    for i in range(1, count + 1):
        seed = i * 7919
        risk_score = round(1 - math.sqrt(1 - seeded_random(seed + 2)), 3)
        chronic = risk_score > 0.6 or seeded_random(seed + 3) < 0.15

        hcc_codes = []
        for code, min_risk, offset, probability in CODED_CONDITION_RULES:
            eligible = chronic if min_risk is None else risk_score > min_risk
            if eligible and seeded_random(seed + offset) < probability:
                hcc_codes.append(code)

        members.append(
            {
                "member_id": f"M{i:06d}",
                "age": math.floor(18 + seeded_random(seed + 4) * 67),
                "gender": "F" if seeded_random(seed + 5) < 0.5 else "M",
                "state": US_STATES[math.floor(seeded_random(seed + 1) * len(US_STATES))],
                "plan_type": PLAN_TYPES[pick_weighted(seed, PLAN_WEIGHTS)],
                "risk_score": risk_score,
                "chronic_condition_flag": chronic,
                "hcc_codes": hcc_codes,
                "member_months": 12,
            }
        )
    return members


def generate_claims(
    members: list[dict[str, Any]],
    max_claims: int = DEFAULT_MAX_CLAIMS,
) -> list[dict[str, Any]]:
    """Generate 3-20 claims per member, scaled by claim type and risk score."""
    claims = []
    for m, member in enumerate(members):
        claim_count = math.floor(3 + seeded_random(m * 7) * 18)
        for c in range(claim_count):
            seed = (m * 10000 + c) * 31
            claim_type = CLAIM_TYPES[pick_weighted(seed, CLAIM_TYPE_WEIGHTS)]
            service_date = CLAIMS_START + timedelta(
                days=math.floor(seeded_random(seed + 1) * CLAIMS_SPAN_DAYS)
            )
            cost = BASE_CLAIM_COST[claim_type]
            cost *= 0.7 + seeded_random(seed + 2)
            cost *= 0.9 + member["risk_score"] * 0.3
            claims.append(
                {
                    "claim_id": f"CLM{len(claims) + 1:08d}",
                    "member_id": member["member_id"],
                    "service_date": service_date.isoformat(),
                    "claim_type": claim_type,
                    "allowed_amount": round(cost, 2),
                }
            )
            if len(claims) >= max_claims:
                return claims
    return claims


def write_dataset(out_dir: Path, members: list[dict[str, Any]], claims: list[dict[str, Any]]) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / MEMBERS_FILE).write_text(json.dumps(members), encoding="utf-8")
    (out_dir / CLAIMS_FILE).write_text(json.dumps(claims), encoding="utf-8")


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Generate a synthetic members/claims dataset")
    parser.add_argument(
        "--members",
        type=int,
        default=DEFAULT_MEMBERS,
        help=f"Number of members (default: {DEFAULT_MEMBERS:,})",
    )
    parser.add_argument(
        "--max-claims",
        type=int,
        default=DEFAULT_MAX_CLAIMS,
        help=f"Cap on total claims (default: {DEFAULT_MAX_CLAIMS:,})",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path(settings.data_dir),
        help="Output directory (default: DATA_DIR setting)",
    )
    args = parser.parse_args()

    logger.info(f"Generating {args.members:,} synthetic members...")
    members = generate_members(args.members)
    logger.info("Generating synthetic claims...")
    claims = generate_claims(members, args.max_claims)

    write_dataset(args.out, members, claims)
    logger.info(f"Done. {len(members):,} members, {len(claims):,} claims written to {args.out}/")


if __name__ == "__main__":
    main()
