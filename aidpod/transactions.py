"""
Unsigned Transaction Builder

Turns an Effect into an atomic group of unsigned Algorand transactions.
Nothing here signs or submits; the group is handed to the wallets of
every required authorizer and then to algod.

Group layout:
- DEPOSIT: payment from the contributor to the campaign escrow
- PAYOUT / REFUND: payment from the escrow to the destination
- one zero-amount payment to the escrow from every required authorizer
  that is not already the sender of the value payment, so each of them
  has to sign the group
"""

from typing import List, Optional

from algosdk import transaction

from aidpod.models import CAMPAIGN_CUSTODY, Effect, EffectKind

DEFAULT_NOTE_PREFIX = "aidpod"


def build_note(campaign_id: int, kind: EffectKind, prefix: str = DEFAULT_NOTE_PREFIX) -> bytes:
    return f"{prefix}:{campaign_id}:{kind.value}".encode()


def _value_payment(
    effect: Effect,
    escrow_address: str,
    sp: transaction.SuggestedParams,
    note: bytes,
) -> Optional[transaction.PaymentTxn]:
    if not effect.moves_value:
        return None

    if effect.kind == EffectKind.DEPOSIT:
        if not effect.required_authorizers:
            raise ValueError("Deposit effect has no contributor to send the payment")
        sender = effect.required_authorizers[0]
        receiver = escrow_address if effect.destination == CAMPAIGN_CUSTODY else effect.destination
    elif effect.kind in (EffectKind.PAYOUT, EffectKind.REFUND):
        if not effect.destination:
            raise ValueError(f"{effect.kind.value} effect has no destination")
        sender = escrow_address
        receiver = effect.destination
    else:
        raise ValueError(f"{effect.kind.value} effect cannot move value")

    return transaction.PaymentTxn(
        sender=sender,
        sp=sp,
        receiver=receiver,
        amt=effect.amount,
        note=note,
    )


def build_effect_group(
    effect: Effect,
    escrow_address: str,
    sp: transaction.SuggestedParams,
    campaign_id: int = 0,
    note_prefix: str = DEFAULT_NOTE_PREFIX,
) -> List[transaction.Transaction]:
    """
    Build the unsigned transaction group for an Effect.

    Args:
        effect: Effect produced by an accepted campaign action
        escrow_address: Address holding the campaign funds
        sp: Suggested params from algod
        campaign_id: Campaign the effect belongs to, recorded in the note
        note_prefix: Prefix for transaction notes

    Returns:
        Unsigned transactions sharing one group id (empty when the effect
        neither moves value nor needs an authorizer)
    """
    note = build_note(campaign_id, effect.kind, note_prefix)
    txns = []

    payment = _value_payment(effect, escrow_address, sp, note)
    if payment is not None:
        txns.append(payment)

    for authorizer in effect.required_authorizers:
        if payment is not None and authorizer == payment.sender:
            continue
        txns.append(transaction.PaymentTxn(
            sender=authorizer,
            sp=sp,
            receiver=escrow_address,
            amt=0,
            note=note,
        ))

    if len(txns) > 1:
        transaction.assign_group_id(txns)
    return txns


def signers_for(txns: List[transaction.Transaction]) -> List[str]:
    """Addresses that must sign the group, in transaction order."""
    return list(dict.fromkeys(txn.sender for txn in txns))
