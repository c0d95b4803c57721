"""Binds one GridView to each browser session through the signed cookie."""

from __future__ import annotations

from flask import session

from comax import config
from comax.grid.view import GridView, create_view, drop_view, get_view
from comax.logger import get_logger

logger = get_logger(__name__)

VIEW_KEY = "view_id"


def current_view() -> GridView:
    """Return this session's view, building and loading a new one when absent or expired."""
    view = get_view(session.get(VIEW_KEY))
    if view is not None:
        return view

    app_config = config.load_config()
    view = create_view(
        page_size=app_config["grid_page_size"],
        store_page_size=app_config["store_page_size"],
        load_delay=app_config["grid_load_delay"],
    )
    view.reload()
    session[VIEW_KEY] = view.view_id
    logger.info("Created grid view %s", view.view_id)
    return view


def forget_view() -> None:
    """Drop this session's view (on login/logout)."""
    view_id = session.pop(VIEW_KEY, None)
    if view_id:
        drop_view(view_id)
