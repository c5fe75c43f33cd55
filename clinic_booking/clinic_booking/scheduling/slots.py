"""
Slot Assembler

Produces the canonical "available slots" list and the coarser
"available blocks" view used for display.
"""

from typing import Iterable, List

from .types import Slot


def assemble_slots(slots: Iterable[Slot]) -> List[Slot]:
	"""
	Deduplica por (start_at, end_at) y ordena ascendente por inicio.

	Este es el resultado canónico de slots disponibles.
	"""
	return sorted(set(slots))


def merge_contiguous(slots: Iterable[Slot]) -> List[Slot]:
	"""
	Une slots contiguos en bloques maximales.

	Dos slots se unen solo si el fin de uno es exactamente el inicio del
	siguiente. Es un post-proceso de presentación; no afecta las reservas.

	Args:
		slots: slots en cualquier orden; se normalizan con assemble_slots

	Returns:
		list[Slot]: bloques que no se solapan entre sí
	"""
	blocks: List[Slot] = []

	for slot in assemble_slots(slots):
		if blocks and blocks[-1].end_at == slot.start_at:
			blocks[-1] = Slot(blocks[-1].start_at, slot.end_at)
		elif blocks and slot.start_at < blocks[-1].end_at:
			# Slots de distinto largo que se solapan quedan dentro del bloque actual
			if slot.end_at > blocks[-1].end_at:
				blocks[-1] = Slot(blocks[-1].start_at, slot.end_at)
		else:
			blocks.append(slot)

	return blocks
