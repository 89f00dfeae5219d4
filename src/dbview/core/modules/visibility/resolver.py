"""Column visibility resolution and the view-settings mutations behind the show/hide menu.

Three readings of the same settings coexist:

* explicit-list: what is rendered as columns. A non-empty ``visible_properties`` list is the
  only signal; ``Property.is_visible`` is ignored. An empty list falls back to default-fallback.
* default-fallback: used while a view has no column list; ``Property.is_visible`` decides.
* menu-display: what the show/hide menu lists as hidden. A property is hidden when it is in
  ``hidden_properties`` or in neither list.

Menu-display and default-fallback disagree about properties that are in neither list. Both
readings are kept as they are; the UI depends on each.
"""

from enum import StrEnum

from pydantic import BaseModel

from dbview.core.modules.property.models import Property
from dbview.core.modules.view.models import ViewSettings
from dbview.errors import CapabilityError, NotFoundError


class VisibilityMode(StrEnum):
    EXPLICIT_LIST = "explicit_list"
    DEFAULT_FALLBACK = "default_fallback"
    MENU_DISPLAY = "menu_display"


class VisibilityResult(BaseModel):
    visible: list[Property]
    hidden: list[Property]

    @property
    def visible_ids(self) -> list[str]:
        return [prop.id for prop in self.visible]

    @property
    def hidden_ids(self) -> list[str]:
        return [prop.id for prop in self.hidden]


class VisibilityStats(BaseModel):
    visible: int
    hidden: int
    unassigned: int
    total: int
    percentage: int  # Share of visible properties, rounded


def _column_order(properties: list[Property]) -> list[Property]:
    return sorted(properties, key=lambda p: p.order)


def resolve_visibility(
    properties: list[Property], settings: ViewSettings, mode: VisibilityMode = VisibilityMode.EXPLICIT_LIST
) -> VisibilityResult:
    """Split properties into visible and hidden ones, both in column order.

    Args:
        properties: Current schema
        settings: View settings
        mode: Which reading of the settings to apply

    Returns:
        Visible and hidden properties
    """
    visible_ids = set(settings.visible_properties)
    hidden_ids = set(settings.hidden_properties)

    if mode == VisibilityMode.EXPLICIT_LIST and not visible_ids:
        mode = VisibilityMode.DEFAULT_FALLBACK

    if mode == VisibilityMode.EXPLICIT_LIST:
        is_visible = lambda prop: prop.id in visible_ids  # noqa: E731
    elif mode == VisibilityMode.DEFAULT_FALLBACK:
        is_visible = lambda prop: prop.is_visible  # noqa: E731
    else:
        is_visible = lambda prop: prop.id in visible_ids and prop.id not in hidden_ids  # noqa: E731

    ordered = _column_order(properties)
    return VisibilityResult(
        visible=[prop for prop in ordered if is_visible(prop)],
        hidden=[prop for prop in ordered if not is_visible(prop)],
    )


def can_hide_property(prop: Property) -> bool:
    """System and required properties can never be hidden."""
    return prop.can_hide


def _find_property(properties: list[Property], property_id: str) -> Property:
    for prop in properties:
        if prop.id == property_id:
            return prop
    raise NotFoundError(f"Property '{property_id}' not found")


def toggle_property(
    settings: ViewSettings, properties: list[Property], property_id: str, make_visible: bool
) -> ViewSettings:
    """Move a property into exactly one of the visible/hidden lists.

    System and required properties found in the hidden list are dropped from it.

    Raises:
        NotFoundError: If the property does not exist
        CapabilityError: If hiding a system or required property
    """
    prop = _find_property(properties, property_id)
    if not make_visible and not can_hide_property(prop):
        kind = "system" if prop.is_system else "required"
        raise CapabilityError(f"Property '{prop.name}' is {kind} and cannot be hidden")

    visible = [pid for pid in settings.visible_properties if pid != property_id]
    locked = {p.id for p in properties if not can_hide_property(p)}
    hidden = [pid for pid in settings.hidden_properties if pid != property_id and pid not in locked]
    if make_visible:
        visible.append(property_id)
    else:
        hidden.append(property_id)
    return settings.model_copy(update={"visible_properties": visible, "hidden_properties": hidden})


def show_all(settings: ViewSettings, properties: list[Property]) -> ViewSettings:
    return settings.model_copy(
        update={"visible_properties": [prop.id for prop in properties], "hidden_properties": []}
    )


def hide_all(settings: ViewSettings, properties: list[Property]) -> ViewSettings:
    """Hide every property that may be hidden; system and required ones stay visible."""
    return settings.model_copy(
        update={
            "visible_properties": [prop.id for prop in properties if not can_hide_property(prop)],
            "hidden_properties": [prop.id for prop in properties if can_hide_property(prop)],
        }
    )


def reset_to_default(
    settings: ViewSettings, properties: list[Property], default_visible_ids: list[str]
) -> ViewSettings:
    """Show system, required and the configured default properties; hide the rest."""
    defaults = set(default_visible_ids)
    keep = lambda prop: not can_hide_property(prop) or prop.id in defaults  # noqa: E731
    return settings.model_copy(
        update={
            "visible_properties": [prop.id for prop in properties if keep(prop)],
            "hidden_properties": [prop.id for prop in properties if not keep(prop)],
        }
    )


def visibility_stats(properties: list[Property], settings: ViewSettings) -> VisibilityStats:
    """Counts shown in the show/hide menu header."""
    visible = len(settings.visible_properties)
    hidden = len(settings.hidden_properties)
    total = len(properties)
    return VisibilityStats(
        visible=visible,
        hidden=hidden,
        unassigned=max(total - visible - hidden, 0),
        total=total,
        percentage=round(visible / total * 100) if total else 0,
    )
