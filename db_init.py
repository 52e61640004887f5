"""
Database initialization script for the extraordinary duty roster.
Creates all necessary tables and initializes with sample data if needed.
"""

import sqlite3

from data_loader import generate_sample_data


def create_database_schema(db_path: str = "escala.db"):
    """
    Create all database tables.

    Args:
        db_path: Path to SQLite database file
    """
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    # Personnel directory (explicit rank and group per person)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS Personnel (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Name TEXT NOT NULL UNIQUE,
            Rank TEXT,
            GroupName TEXT NOT NULL DEFAULT 'OUTROS',
            IsActive INTEGER NOT NULL DEFAULT 1,
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Ordinary-duty group per day
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS OrdinaryDutyCalendar (
            Year INTEGER NOT NULL,
            Month INTEGER NOT NULL,
            Day INTEGER NOT NULL,
            GroupName TEXT NOT NULL,
            PRIMARY KEY (Year, Month, Day)
        )
    """)

    # One JSON document per operation and month ({"day": [slot, ...]})
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS MonthRosters (
            Operation TEXT NOT NULL,
            Year INTEGER NOT NULL,
            Month INTEGER NOT NULL,
            Data TEXT NOT NULL DEFAULT '{}',
            UpdatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UpdatedBy TEXT,
            PRIMARY KEY (Operation, Year, Month)
        )
    """)

    conn.commit()
    conn.close()
    print("✅ Database schema created")


def initialize_sample_personnel(db_path: str = "escala.db"):
    """Insert the sample personnel directory"""
    directory, _, _ = generate_sample_data()

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    for person in directory:
        cursor.execute("""
            INSERT OR IGNORE INTO Personnel (Name, Rank, GroupName)
            VALUES (?, ?, ?)
        """, (person.name, person.rank, person.group))

    conn.commit()
    conn.close()
    print(f"✅ Sample personnel initialized: {len(directory)} total")


def initialize_sample_calendar(db_path: str = "escala.db"):
    """Insert the sample ordinary-duty calendar"""
    _, _, duty_calendar = generate_sample_data()

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    for day in duty_calendar.days():
        cursor.execute("""
            INSERT OR REPLACE INTO OrdinaryDutyCalendar (Year, Month, Day, GroupName)
            VALUES (?, ?, ?, ?)
        """, (duty_calendar.month.year, duty_calendar.month.month, day, duty_calendar.group_for(day)))

    conn.commit()
    conn.close()
    print(f"✅ Ordinary-duty calendar initialized for {duty_calendar.month}")


def initialize_database(db_path: str = "escala.db", with_sample_data: bool = True):
    """
    Initialize complete database with schema and optional sample data.

    Args:
        db_path: Path to SQLite database file
        with_sample_data: Whether to include sample personnel and calendar
    """
    print(f"🔧 Initializing database: {db_path}")
    print("=" * 60)

    create_database_schema(db_path)

    if with_sample_data:
        initialize_sample_personnel(db_path)
        initialize_sample_calendar(db_path)

    print("=" * 60)
    print("✅ Database initialization complete!")
    print()
    print("You can now start the server with:")
    print(f"  python main.py serve --db {db_path}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Initialize roster database')
    parser.add_argument('db_path', nargs='?', default='escala.db',
                        help='Path to database file (default: escala.db)')
    parser.add_argument('--with-sample-data', '--sample-data', action='store_true',
                        help='Include sample personnel and ordinary-duty calendar')

    args = parser.parse_args()

    initialize_database(args.db_path, with_sample_data=args.with_sample_data)
