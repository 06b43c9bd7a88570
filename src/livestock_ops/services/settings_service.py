"""Per-user settings storage."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.currency import get_currency_preset
from livestock_ops.calculators.settings_rules import (
    merge_notification_settings,
    validate_currency_change,
    validate_partial_settings,
)
from livestock_ops.errors import AppError
from livestock_ops.models import DEFAULT_NOTIFICATIONS, User, UserSettings
from livestock_ops.services.audit_service import AuditService

NON_SETTING_COLUMNS = frozenset({"settings_id", "user_id", "created_at", "updated_at"})
SETTING_KEYS = tuple(
    c.name for c in UserSettings.__table__.columns if c.name not in NON_SETTING_COLUMNS
)


def default_settings() -> dict[str, Any]:
    """Column defaults of ``UserSettings``."""
    values: dict[str, Any] = {}
    for column in UserSettings.__table__.columns:
        if column.name in NON_SETTING_COLUMNS or column.default is None:
            continue
        if column.default.is_scalar:
            values[column.name] = column.default.arg
    values["notifications"] = dict(DEFAULT_NOTIFICATIONS)
    return values


def settings_to_dict(settings: UserSettings) -> dict[str, Any]:
    return {key: getattr(settings, key) for key in SETTING_KEYS}


class SettingsService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def _get_row(self, user_id) -> UserSettings | None:
        result = await self.session.execute(
            select(UserSettings).where(UserSettings.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_settings(self, user: User) -> UserSettings:
        """Stored settings, or an unsaved row holding the defaults."""
        row = await self._get_row(user.user_id)
        if row is not None:
            return row
        return UserSettings(user_id=user.user_id, **default_settings())

    async def update_user_settings(self, user: User, data: dict[str, Any]) -> UserSettings:
        """Apply a partial update.

        Switching currency copies the preset's symbol and separators unless
        the update sets them explicitly.
        """
        updates = {k: v for k, v in data.items() if k in SETTING_KEYS and v is not None}
        errors = validate_partial_settings(updates)
        if errors:
            raise AppError("VALIDATION_ERROR", "; ".join(errors), metadata={"errors": errors})

        row = await self._get_row(user.user_id)
        if row is None:
            row = UserSettings(user_id=user.user_id, **default_settings())
            self.session.add(row)

        new_code = updates.get("currency_code")
        if new_code is not None and new_code != row.currency_code:
            error = validate_currency_change(row.currency_code, new_code)
            if error:
                raise AppError("VALIDATION_ERROR", error)
            preset = get_currency_preset(new_code)
            preset_values = {
                "currency_symbol": preset.symbol,
                "currency_decimals": preset.decimals,
                "currency_symbol_position": preset.symbol_position,
                "thousand_separator": preset.thousand_separator,
                "decimal_separator": preset.decimal_separator,
            }
            updates = {**preset_values, **updates}

        if "notifications" in updates:
            updates["notifications"] = merge_notification_settings(
                DEFAULT_NOTIFICATIONS, row.notifications, updates["notifications"]
            )

        for key, value in updates.items():
            setattr(row, key, value)

        await self.session.flush()
        await self.audit.record_audit(
            user.user_id, "update", "user_settings", row.settings_id, updates
        )
        return row

    async def reset_user_settings(self, user: User) -> UserSettings:
        row = await self._get_row(user.user_id)
        if row is None:
            row = UserSettings(user_id=user.user_id)
            self.session.add(row)
        for key, value in default_settings().items():
            setattr(row, key, value)
        await self.session.flush()
        await self.audit.record_audit(user.user_id, "reset", "user_settings", row.settings_id)
        return row
