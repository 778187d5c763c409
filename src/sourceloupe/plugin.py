"""Plugin boundary: a package exposes its rules through one entry point class."""

from __future__ import annotations

import abc
import importlib.metadata
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sourceloupe.engine.rule import ScanRule

logger = logging.getLogger(__name__)

INVALID_PACKAGE_ID = "invalid"


class SourceLoupePlugin(abc.ABC):
    """Base class for rule packages.

    A plugin implements :meth:`get_rules`; :meth:`get_package_id` is provided
    and reports the name of the installed distribution the plugin ships in.
    Selecting which of the returned rules actually run is up to the host::

        class MyRules(SourceLoupePlugin):
            def get_rules(self) -> list[ScanRule]:
                return [NoTodoComments(), MethodCount()]
    """

    def get_package_id(self) -> str:
        """Return the distribution name that provides this plugin, or ``"invalid"``."""
        top_level = type(self).__module__.split(".")[0]
        distributions = importlib.metadata.packages_distributions().get(top_level, [])
        if not distributions:
            logger.error(
                "Could not find an installed distribution providing '%s'. Is the plugin installed?",
                top_level,
            )
            return INVALID_PACKAGE_ID
        return distributions[0]

    @abc.abstractmethod
    def get_rules(self) -> list[ScanRule]:
        """Return the rules this plugin provides."""
