"""
Root provisioning for a fresh dataset.

``EpochCommitter.initialize()`` never creates a root on its own; an
operator runs ``provision_root`` once per root address beforehand.
"""

from __future__ import annotations

import logging

from ..directory.store import DirectoryStore
from ..exceptions import PointerNotFoundError, RootAlreadyProvisionedError
from ..pointer.base import PointerStore

logger = logging.getLogger(__name__)


async def provision_root(
    pointers: PointerStore,
    directory: DirectoryStore,
    root_address: str,
) -> str:
    """Write an empty directory and point ``root_address`` at it.

    Args:
        pointers: Pointer store holding the root
        directory: Directory store for the empty version
        root_address: Address to provision

    Returns:
        Hash of the empty directory

    Raises:
        RootAlreadyProvisionedError: If the address already has a value
    """
    try:
        current = await pointers.read(root_address)
    except PointerNotFoundError:
        current = None
    if current is not None:
        raise RootAlreadyProvisionedError(root_address, current)

    ref = await directory.write({})
    await pointers.write(root_address, ref.hash)
    logger.info("Provisioned root %s -> %s", root_address, ref.hash)
    return ref.hash
