from __future__ import annotations

from typing import Any, Callable, Optional

import flet as ft


def _flat_style(text_color: str, bgcolor: str, radius: int) -> ft.ButtonStyle:
    style_kwargs = dict(
        shape=ft.RoundedRectangleBorder(radius=radius),
        color=text_color,
        bgcolor=bgcolor,
    )
    try:
        return ft.ButtonStyle(elevation=0, shadow_color="#00000000", **style_kwargs)
    except TypeError:
        try:
            return ft.ButtonStyle(elevation=0, **style_kwargs)
        except TypeError:
            return ft.ButtonStyle(**style_kwargs)


def cancel_button(
    label: str,
    on_click: Optional[Callable],
    icon: Optional[Any] = ft.Icons.CLOSE_ROUNDED,
    *,
    text_color: str = "#1E293B",
    bgcolor: str = "#F1F5F9",
    radius: int = 8,
) -> ft.ElevatedButton:
    btn = ft.ElevatedButton(label, icon=icon, on_click=on_click, style=_flat_style(text_color, bgcolor, radius))
    if hasattr(btn, "elevation"):
        btn.elevation = 0
    return btn


def danger_button(
    label: str,
    on_click: Optional[Callable],
    icon: Optional[Any] = ft.Icons.DELETE_OUTLINE,
    *,
    radius: int = 8,
) -> ft.ElevatedButton:
    return ft.ElevatedButton(label, icon=icon, on_click=on_click, style=_flat_style("#FFFFFF", "#DC2626", radius))
