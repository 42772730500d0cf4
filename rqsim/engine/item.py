from __future__ import annotations
from dataclasses import dataclass

# Items carry their producer's identity: producer_id * ITEM_STRIDE + seq
ITEM_STRIDE = 10000

@dataclass(frozen=True)
class Provenance:
    producer_id: int
    seq: int

def make_item(producer_id: int, seq: int) -> int:
    if producer_id < 0 or seq < 0:
        raise ValueError(f"producer_id and seq must be >= 0, got {producer_id}, {seq}")
    if seq >= ITEM_STRIDE:
        raise ValueError(f"seq {seq} does not fit below stride {ITEM_STRIDE}")
    return producer_id * ITEM_STRIDE + seq

def provenance(item: int) -> Provenance:
    producer_id, seq = divmod(item, ITEM_STRIDE)
    return Provenance(producer_id=producer_id, seq=seq)
