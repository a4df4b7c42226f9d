"""
Menu timeline maintenance for a mess.

A timeline is a tuple of DayMenu entries, at most one per calendar day,
always sorted newest first, and never holding a day without dishes.
Every operation takes a timeline and returns a new one; the input is
never modified, so a failed call leaves the caller's timeline intact.
"""

import datetime as dt
import logging
from typing import Iterable, Optional, Sequence, Tuple, Union

import pydantic

from schemas import DayMenu, Dish, as_calendar_day

logger = logging.getLogger(__name__)

Timeline = Tuple[DayMenu, ...]
DishInput = Union[Dish, dict]


class TimelineError(Exception):
    """Base class for rejected timeline mutations."""


class ValidationError(TimelineError, ValueError):
    """Malformed mutation payload: no usable dishes, or a missing/unparseable date."""


class IndexOutOfRange(TimelineError, IndexError):
    """A day or dish position that does not exist in the timeline."""


def calendar_day(value) -> dt.date:
    try:
        return as_calendar_day(value)
    except ValueError as e:
        raise ValidationError(str(e)) from None


def sort_timeline(days: Iterable[DayMenu]) -> Timeline:
    return tuple(sorted(days, key=lambda day: day.date, reverse=True))


def _to_dish(item: DishInput) -> Optional[Dish]:
    # Rows with a blank name are form leftovers, not errors.
    if isinstance(item, Dish):
        return item
    if not isinstance(item, dict):
        raise ValidationError(f"Invalid dish: {item!r}")
    name = item.get("name")
    if name is None or not str(name).strip():
        return None
    try:
        return Dish.model_validate(item)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid dish {name!r}: {e.errors()[0]['msg']}") from None


def clean_dishes(items: Iterable[DishInput]) -> Tuple[Dish, ...]:
    dishes = (_to_dish(item) for item in items or ())
    return tuple(dish for dish in dishes if dish is not None)


def _check_position(timeline: Timeline, day_index, dish_index) -> DayMenu:
    for label, index in (("day", day_index), ("dish", dish_index)):
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexOutOfRange(f"Invalid {label} index: {index!r}")
    if not 0 <= day_index < len(timeline):
        raise IndexOutOfRange(f"No menu day at index {day_index}")
    day = timeline[day_index]
    if not 0 <= dish_index < len(day.dishes):
        raise IndexOutOfRange(f"No dish at index {dish_index} on {day.date.isoformat()}")
    return day


def upsert_day(timeline: Sequence[DayMenu], date, new_dishes: Iterable[DishInput]) -> Timeline:
    """Add dishes to a calendar day, creating the day if it is not on the timeline.

    Dishes are appended after any the day already has, so submitting the
    same dishes twice lists them twice.

    Raises:
        ValidationError: if ``date`` is missing or unparseable, or no dish
            with a non-blank name remains after filtering.
    """
    day = calendar_day(date)
    dishes = clean_dishes(new_dishes)
    if not dishes:
        raise ValidationError("At least one valid menu item with a name is required")

    updated = []
    merged = False
    for existing in timeline:
        if existing.date == day:
            existing = existing.model_copy(update={"dishes": existing.dishes + dishes})
            merged = True
        updated.append(existing)
    if not merged:
        updated.append(DayMenu(date=day, dishes=dishes))

    logger.debug("%s %d dish(es) on %s", "Merged" if merged else "Added", len(dishes), day)
    return sort_timeline(updated)


def edit_dish(timeline: Sequence[DayMenu], day_index: int, dish_index: int, replacement: DishInput) -> Timeline:
    """Replace the dish at (day_index, dish_index). Days are not re-sorted."""
    timeline = tuple(timeline)
    day = _check_position(timeline, day_index, dish_index)
    dish = _to_dish(replacement)
    if dish is None:
        raise ValidationError("Menu item name is required")

    dishes = day.dishes[:dish_index] + (dish,) + day.dishes[dish_index + 1:]
    logger.debug("Edited dish %d on %s", dish_index, day.date)
    return timeline[:day_index] + (day.model_copy(update={"dishes": dishes}),) + timeline[day_index + 1:]


def delete_dish(timeline: Sequence[DayMenu], day_index: int, dish_index: int) -> Timeline:
    """Remove the dish at (day_index, dish_index), dropping the day if it empties.

    Later positions shift down by one, so indices read before the call are
    stale afterwards.
    """
    timeline = tuple(timeline)
    day = _check_position(timeline, day_index, dish_index)
    dishes = day.dishes[:dish_index] + day.dishes[dish_index + 1:]
    if not dishes:
        logger.debug("Removed last dish, dropping %s", day.date)
        return timeline[:day_index] + timeline[day_index + 1:]
    logger.debug("Removed dish %d on %s", dish_index, day.date)
    return timeline[:day_index] + (day.model_copy(update={"dishes": dishes}),) + timeline[day_index + 1:]


def load_timeline(records: Optional[Iterable[Union[DayMenu, dict]]]) -> Timeline:
    """Build a valid timeline from stored day records.

    Records for the same calendar day are merged in stored order and
    records without dishes are skipped.
    """
    timeline: Timeline = ()
    for record in records or ():
        if isinstance(record, DayMenu):
            date, items = record.date, record.dishes
        elif isinstance(record, dict):
            date, items = record.get("date"), record.get("items", record.get("dishes"))
        else:
            raise ValidationError(f"Invalid menu record: {record!r}")
        dishes = clean_dishes(items)
        if dishes:
            timeline = upsert_day(timeline, date, dishes)
    return timeline


def current_menu(timeline: Sequence[DayMenu], today: Optional[dt.date] = None) -> Optional[DayMenu]:
    """The day a consumer should see: today's menu, else the latest earlier one."""
    today = calendar_day(today) if today is not None else dt.datetime.now(dt.timezone.utc).date()
    for day in timeline:
        if day.date <= today:
            return day
    return None
