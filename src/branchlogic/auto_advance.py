"""Auto-advance heuristic: can a page move on without a "next" button?"""

from typing import Iterable

from branchlogic.model import Block, BlockType

INPUT_BLOCK_TYPES = frozenset({
    BlockType.TEXT_INPUT,
    BlockType.MULTIPLE_CHOICE,
    BlockType.DROPDOWN,
    BlockType.PICTURE_CHOICE,
})

_SINGLE_SELECT_TYPES = frozenset({BlockType.MULTIPLE_CHOICE, BlockType.PICTURE_CHOICE})


def advances_automatically(block: Block) -> bool:
    if block.type in (BlockType.LOADER, BlockType.DROPDOWN):
        return True
    if block.type in _SINGLE_SELECT_TYPES:
        return not block.properties.get("multiple")
    return False


def should_auto_advance(visible_blocks: Iterable[Block]) -> bool:
    """
    True when the visible blocks signal completion on their own.

    More than one answerable input on screen makes it ambiguous which
    answer should trigger the move, so auto-advance is off.
    """
    blocks = list(visible_blocks)
    if sum(1 for block in blocks if block.type in INPUT_BLOCK_TYPES) > 1:
        return False
    return any(advances_automatically(block) for block in blocks)
