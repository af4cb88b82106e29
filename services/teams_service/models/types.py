"""Column types that map to Postgres-native types and degrade on other dialects."""

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

JSONDict = JSON().with_variant(JSONB(), "postgresql")
StringList = JSON().with_variant(ARRAY(String), "postgresql")
