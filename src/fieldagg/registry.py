"""
Metaclass-based auto-registration for reduction strategies.

Classes built with this metaclass are recorded in a registry dict that lives
on the base class declaring ``__registry_key__``.
"""

from abc import ABCMeta
from typing import Any, Dict, Type


class AutoRegisterMeta(ABCMeta):
    """
    Metaclass that registers each concrete subclass under its key attribute.

    The base class names the attribute holding the key via ``__registry_key__``;
    the registry itself is created on that base as ``__registry__``.

    Example:
        class ReducerBase(metaclass=AutoRegisterMeta):
            __registry_key__ = '_mode'

        class CountingReducer(ReducerBase):
            _mode = 'counting'

        # ReducerBase.__registry__['counting'] is CountingReducer
    """

    def __new__(mcs, name: str, bases: tuple, namespace: Dict[str, Any]) -> Type:
        cls = super().__new__(mcs, name, bases, namespace)

        registry_base = None
        for base_cls in cls.__mro__:
            if '__registry_key__' in vars(base_cls):
                registry_base = base_cls
                break

        if registry_base is None:
            return cls

        if '__registry__' not in vars(registry_base):
            registry_base.__registry__ = {}

        # Subclasses without their own key (abstract intermediates) are skipped
        key_attr = registry_base.__registry_key__
        key_value = vars(cls).get(key_attr)
        if key_value is not None:
            registry_base.__registry__[key_value] = cls

        return cls
