"""Import extractors. Importing this package registers every dialect."""

from depcheck.parsers import (
    javascript,  # noqa: F401
    typescript,  # noqa: F401
)
