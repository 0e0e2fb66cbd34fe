from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence

from autotrack.domain.models import Identity, Product, Transaction
from autotrack.domain.permissions import REQUEST_INSIGHTS
from autotrack.services.auth_service import AuthService
from autotrack.services.entity_cache import EntityCache

log = logging.getLogger(__name__)

InsightsGenerator = Callable[[Sequence[Transaction], Sequence[Product]], str]

FALLBACK_TEXT = "Unable to generate insights right now. Please try again later."


class InsightsService:
    """Hands the current transactions and products to an advisory text generator.

    The returned text is passed through untouched.
    """

    def __init__(self, cache: EntityCache, auth: AuthService, generator: Optional[InsightsGenerator] = None):
        self.cache = cache
        self.auth = auth
        self.generator = generator

    async def generate(self, viewer: Optional[Identity]) -> str:
        self.auth.require_action(viewer, REQUEST_INSIGHTS)
        if self.generator is None:
            log.info("insights_unavailable reason=no_generator")
            return FALLBACK_TEXT

        snap = self.cache.snapshot()
        try:
            return await asyncio.to_thread(self.generator, list(snap.transactions), list(snap.products))
        except Exception as e:
            # opaque collaborator; any failure is shown as the fallback text
            log.warning("insights_failed error=%s", e)
            return FALLBACK_TEXT
