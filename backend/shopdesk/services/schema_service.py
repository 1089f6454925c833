# Overview: Live description of the connected database schema.

from __future__ import annotations

from sqlalchemy import inspect

from ..extensions import db


def describe_schema() -> dict:
    """Tables, columns, foreign keys and indexes as the database reports them."""
    inspector = inspect(db.engine)
    tables = []
    for table_name in sorted(inspector.get_table_names()):
        if table_name == "alembic_version":
            continue

        pk = set(inspector.get_pk_constraint(table_name).get("constrained_columns") or [])
        columns = [
            {
                "name": col["name"],
                "type": str(col["type"]),
                "nullable": bool(col["nullable"]),
                "primary_key": col["name"] in pk,
                "default": str(col["default"]) if col.get("default") is not None else None,
            }
            for col in inspector.get_columns(table_name)
        ]
        foreign_keys = [
            {
                "columns": fk["constrained_columns"],
                "references": f"{fk['referred_table']}({', '.join(fk['referred_columns'])})",
            }
            for fk in inspector.get_foreign_keys(table_name)
        ]
        indexes = [
            {"name": ix["name"], "columns": ix["column_names"], "unique": bool(ix["unique"])}
            for ix in inspector.get_indexes(table_name)
        ]
        tables.append({
            "name": table_name,
            "columns": columns,
            "foreign_keys": foreign_keys,
            "indexes": indexes,
        })

    return {"dialect": db.engine.dialect.name, "tables": tables}
