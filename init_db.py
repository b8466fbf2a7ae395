from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from peep.db.session import engine, Base

# Import all models before create_all
import peep.models  # noqa: F401

def create_missing_tables(bind=engine):
    print("Creating missing tables...")
    try:
        Base.metadata.create_all(bind=bind)
        print("✅ Tables created successfully (if missing).")
    except SQLAlchemyError as e:
        print("❌ Error creating tables:", e)

def add_missing_columns(bind=engine):
    inspector = inspect(bind)
    existing_tables = inspector.get_table_names()
    with bind.connect() as conn:
        for table_name, model_table in Base.metadata.tables.items():
            if table_name not in existing_tables:
                print(f"⚠️ Table {table_name} not found in DB, creating it...")
                model_table.create(bind=bind, checkfirst=True)
                continue
            existing_cols = {col["name"] for col in inspector.get_columns(table_name)}
            for col_name, col in model_table.columns.items():
                if col_name in existing_cols:
                    continue
                sql = f'ALTER TABLE "{table_name}" ADD COLUMN "{col_name}" {col.type.compile(bind.dialect)};'
                print(f"Adding column {table_name}.{col_name}")
                try:
                    conn.execute(text(sql))
                    conn.commit()
                except SQLAlchemyError as e:
                    conn.rollback()
                    print(f"⚠️ Error adding column {col_name}: {e}")

if __name__ == "__main__":
    print("🔧 Syncing database...")
    create_missing_tables()
    add_missing_columns()
    print("✅ Database sync complete.")
