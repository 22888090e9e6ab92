# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import functools


X = tp.TypeVar("X")


class Registry(tp.MutableMapping[str, X]):
    """Registers functions, classes or instances by name, with optional aliases.
    Names are stored lower-cased so that lookups are case-insensitive.
    """

    def __init__(self) -> None:
        super().__init__()
        self.data: tp.Dict[str, X] = {}
        self._aliases: tp.Dict[str, str] = {}
        self._information: tp.Dict[str, tp.Dict[tp.Hashable, tp.Any]] = {}

    def register(self, obj: X, info: tp.Optional[tp.Dict[tp.Hashable, tp.Any]] = None) -> X:
        """Decorator method for registering functions/classes under their own name"""
        name = getattr(obj, "__name__", obj.__class__.__name__)
        self.register_name(name, obj, info)
        return obj

    def register_name(
        self,
        name: str,
        obj: X,
        info: tp.Optional[tp.Dict[tp.Hashable, tp.Any]] = None,
        aliases: tp.Iterable[str] = (),
    ) -> None:
        """Register an object with a provided name (and optional aliases)"""
        key = name.lower()
        if key in self or key in self._aliases:
            raise RuntimeError(f'Encountered a name collision "{name}"')
        self.data[key] = obj
        for alias in aliases:
            if alias.lower() in self or alias.lower() in self._aliases:
                raise RuntimeError(f'Encountered an alias collision "{alias}"')
            self._aliases[alias.lower()] = key
        if info is not None:
            assert isinstance(info, dict)
            self._information[key] = info

    def register_with_info(self, **info: tp.Any) -> tp.Callable[[X], X]:
        """Decorator for registering a function and information about it"""
        return functools.partial(self.register, info=info)

    def resolve(self, name: str) -> str:
        """Returns the registered name for a name or an alias"""
        key = name.strip().lower()
        return self._aliases.get(key, key)

    def unregister(self, name: str) -> None:
        key = self.resolve(name)
        if key in self.data:
            del self.data[key]
        self._aliases = {a: k for a, k in self._aliases.items() if k != key}

    def get_info(self, name: str) -> tp.Dict[tp.Hashable, tp.Any]:
        key = self.resolve(name)
        if key not in self.data:
            raise ValueError(f'"{name}" is not registered.')
        return self._information.setdefault(key, {})

    def __getitem__(self, key: str) -> X:
        return self.data[self.resolve(key)]

    def __setitem__(self, key: str, value: X) -> None:
        self.data[key.lower()] = value

    def __delitem__(self, key: str) -> None:
        del self.data[self.resolve(key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.resolve(key) in self.data

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)
