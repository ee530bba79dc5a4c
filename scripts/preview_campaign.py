"""
Campaign Action Preview Script for AidPod

Loads a campaign record from JSON, applies one action through the
lifecycle rules and prints the proposed next record and its effect.
With --build-txn it also fetches suggested params from algod and writes
the unsigned transaction group for the effect. Nothing is signed or sent.

Usage:
    python scripts/preview_campaign.py --record campaign.json --action contribute \\
        --amount 5000000 --contributor <address>
    python scripts/preview_campaign.py --record params.json --action create --out campaign.json
    python scripts/preview_campaign.py --record campaign.json --action claim \\
        --percentage 25 --role creator --build-txn --escrow <address>

Environment variables:
- ALGOD_SERVER / ALGOD_TOKEN: algod node used with --build-txn
"""

import os
import json
import argparse
from dotenv import load_dotenv
from algosdk import transaction
from algosdk.v2client import algod

from aidpod import lifecycle
from aidpod.config import CampaignPolicy
from aidpod.errors import CampaignError
from aidpod.models import CampaignRecord, Role
from aidpod.transactions import build_effect_group, signers_for

load_dotenv()

ACTIONS = [
    "create", "contribute", "claim", "pause", "resume",
    "cancel", "complete", "refund", "contact",
]


def get_algod_client() -> algod.AlgodClient:
    """Create Algorand client from environment variables."""
    server = os.getenv("ALGOD_SERVER", "http://localhost:4001")
    token = os.getenv("ALGOD_TOKEN", "a" * 64)
    return algod.AlgodClient(token, server)


def build_action(args):
    """Translate command line arguments into a lifecycle action."""
    role = Role(args.role) if args.role else Role.CREATOR

    if args.action == "contribute":
        return lifecycle.Contribute(amount=args.amount, contributor=args.contributor)
    if args.action == "claim":
        return lifecycle.ClaimMilestone(percentage=args.percentage, claimer=role)
    if args.action == "pause":
        return lifecycle.Pause(authorizer=role)
    if args.action == "resume":
        return lifecycle.Resume(authorizer=role)
    if args.action == "cancel":
        return lifecycle.Cancel(authorizer=role)
    if args.action == "complete":
        return lifecycle.Complete()
    if args.action == "refund":
        return lifecycle.RequestRefund(
            contributor_total=args.contributor_total,
            amount=args.amount,
            contributor=args.contributor,
        )
    if args.action == "contact":
        return lifecycle.UpdateEmergencyContact(contact=args.contact, authorizer=role)
    raise ValueError(f"Unsupported action: {args.action}")


def print_effect(effect):
    print(f"\nEffect:")
    print(f"   Kind: {effect.kind.value}")
    print(f"   Destination: {effect.destination or '-'}")
    print(f"   Amount: {effect.amount:,}")
    print(f"   Required authorizers: {', '.join(effect.required_authorizers) or '-'}")


def write_transactions(effect, campaign_id: int, escrow: str, path: str):
    """Build the unsigned group for an effect and save it for signing."""
    client = get_algod_client()
    params = client.suggested_params()

    txns = build_effect_group(effect, escrow, params, campaign_id=campaign_id)
    if not txns:
        print("\nNo transactions needed for this effect")
        return

    transaction.write_to_file(txns, path)
    print(f"\n✅ Wrote {len(txns)} unsigned transaction(s) to {path}")
    print(f"   Signers: {', '.join(signers_for(txns))}")


def main():
    parser = argparse.ArgumentParser(
        description="Preview a campaign action without submitting anything"
    )
    parser.add_argument("--record", required=True, help="Campaign record (or params) JSON file")
    parser.add_argument("--action", required=True, choices=ACTIONS)
    parser.add_argument("--amount", type=int, default=0, help="Amount in micro units")
    parser.add_argument("--percentage", type=int, default=0, help="Milestone percentage")
    parser.add_argument("--role", choices=[r.value for r in Role], help="Acting role")
    parser.add_argument("--contributor", help="Contributor address")
    parser.add_argument("--contributor-total", type=int, default=0,
                        help="Contributor's tracked total contribution")
    parser.add_argument("--contact", help="New emergency contact address")
    parser.add_argument("--now", type=int, help="Unix timestamp to evaluate at")
    parser.add_argument("--out", help="Write the resulting record to this JSON file")
    parser.add_argument("--build-txn", action="store_true",
                        help="Build the unsigned transaction group via algod")
    parser.add_argument("--escrow", help="Campaign escrow address (with --build-txn)")
    parser.add_argument("--txn-out", default="campaign_effect.txns",
                        help="Output file for unsigned transactions")

    args = parser.parse_args()

    print("=" * 60)
    print("AidPod - Campaign Action Preview")
    print("=" * 60)

    policy = CampaignPolicy.from_env()

    with open(args.record) as f:
        data = json.load(f)

    try:
        if args.action == "create":
            record = lifecycle.create_campaign(
                lifecycle.CampaignParams(**data), now=args.now, policy=policy
            )
            effect = None
        else:
            current = CampaignRecord.from_dict(data)
            print(f"\nCampaign {current.campaign_id}: {current.title}")
            print(f"   Status: {current.status.name}")
            print(f"   Funds: {current.current_funds:,} / {current.total_goal:,}")
            record, effect = lifecycle.apply(
                current, build_action(args), now=args.now, policy=policy
            )
    except CampaignError as e:
        print(f"\n❌ Rejected ({e.code}): {e.message}")
        return

    print(f"\n✅ Action '{args.action}' accepted")
    print(f"   Status: {record.status.name}")
    print(f"   Funds: {record.current_funds:,} / {record.total_goal:,}")
    print(f"   Claimed: {record.total_claimed:,}")

    if effect is not None:
        print_effect(effect)

    if args.out:
        with open(args.out, "w") as f:
            json.dump(record.to_dict(), f, indent=2)
        print(f"\nRecord saved to: {args.out}")

    if args.build_txn:
        if effect is None:
            print("Note: Campaign creation moves no funds, no transactions to build")
            return
        if not args.escrow:
            print("Error: Set --escrow to build transactions")
            return
        write_transactions(effect, record.campaign_id, args.escrow, args.txn_out)


if __name__ == "__main__":
    main()
