from __future__ import annotations

import asyncio
import logging

from autotrack.application.container import build_container
from autotrack.config import AppPaths, RemoteSettings, get_app_paths
from autotrack.logging_config import setup_logging, teardown_logging

log = logging.getLogger(__name__)


async def _run(paths: AppPaths) -> None:
    container = build_container(paths.session_db_path, settings=RemoteSettings.from_env())
    snap = await container.start()
    log.info(
        "startup_complete users=%s transactions=%s products=%s cash_flows=%s signed_in=%s",
        len(snap.users), len(snap.transactions), len(snap.products), len(snap.cash_flows),
        container.auth.is_authenticated,
    )

    user = container.auth.current_user
    if user is None:
        return
    board = container.reporting.dashboard(user)
    s = board.summary
    log.info(
        "dashboard user_id=%s window=%s revenue=%.2f profit=%.2f cash_on_hand=%.2f low_stock=%s",
        user.id, s.time_label, s.total_revenue, s.total_profit, s.cash_on_hand, s.low_stock_count,
    )


def main() -> None:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    try:
        asyncio.run(_run(paths))
    finally:
        teardown_logging()


if __name__ == "__main__":
    main()
