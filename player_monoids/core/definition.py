from __future__ import annotations

import numbers
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


def _nop(*args: Any) -> None:
    return None


class MonoidDef(BaseModel):
    """Configuration of one attribute: how contributions combine and where the result goes.

    - `identity`: the value of a branch with no contributions.
    - `fold`: reduces the list of contribution values of one branch to a single value.
      `fold([])` must equal `identity`.
    - `apply(value, entity)`: pushes the active branch's value onto the live entity.
    - `on_change(old, new, entity, branch_ref)`: change notification.
    - `listen_to_all_changes`: notify for inactive branches too.
    - `on_branch_created(entity, name)` / `on_branch_deleted(entity, name)`.
    - `value_type`: optional explicit type for contributions; inferred from `identity` otherwise.

    Instances are frozen. Optional hooks that are not supplied are replaced by no-ops here,
    once, so the engine never has to check for their presence.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    identity: Any
    fold: Callable[[list[Any]], Any]
    apply: Callable[[Any, Any], Any]
    on_change: Callable[[Any, Any, Any, Any], Any] = _nop
    listen_to_all_changes: bool = False
    on_branch_created: Callable[[Any, str], Any] = _nop
    on_branch_deleted: Callable[[Any, str], Any] = _nop
    value_type: Any = None

    @field_validator("identity")
    @classmethod
    def _identity_required(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("identity must not be None")
        return v

    @field_validator("on_change", "on_branch_created", "on_branch_deleted", mode="before")
    @classmethod
    def _default_hooks(cls, v: Any) -> Any:
        return _nop if v is None else v

    @field_validator("value_type")
    @classmethod
    def _value_type_is_a_type(cls, v: Any) -> Any:
        if v is None:
            return v
        types = v if isinstance(v, tuple) else (v,)
        if not all(isinstance(t, type) for t in types):
            raise ValueError("value_type must be a type or a tuple of types")
        return v

    @model_validator(mode="after")
    def _identity_matches_value_type(self) -> "MonoidDef":
        if self.value_type is not None and not self.accepts(self.identity):
            raise ValueError(f"identity {self.identity!r} is not an instance of value_type {self.value_type!r}")
        return self

    @property
    def value_kind(self) -> type | tuple[type, ...]:
        """The type every contribution must have.

        Numeric identities accept any real number, so an identity of `1` takes a `0.5` contribution.
        """

        if self.value_type is not None:
            return self.value_type
        if isinstance(self.identity, bool):
            return bool
        if isinstance(self.identity, numbers.Real):
            return numbers.Real
        return type(self.identity)

    def accepts(self, value: Any) -> bool:
        kind = self.value_kind
        kinds = kind if isinstance(kind, tuple) else (kind,)
        # bool is an int subclass; only bool-typed monoids take bools.
        if isinstance(value, bool) and not any(k in (bool, object) for k in kinds):
            return False
        return isinstance(value, kind)

    def identity_law_holds(self) -> bool:
        return self.fold([]) == self.identity

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MonoidDef":
        # Validates a copy; the caller's mapping is never touched.
        return cls.model_validate(dict(data))

    def with_hooks(self, **hooks: Callable[..., Any] | None) -> "MonoidDef":
        fields = dict(self)
        fields.update(hooks)
        return MonoidDef.model_validate(fields)
