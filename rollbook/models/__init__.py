# Models package init: importing it registers every table with Base.metadata
from rollbook.models.student import Student  # noqa: F401
