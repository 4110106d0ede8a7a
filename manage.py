#!/usr/bin/env python
"""
Django's command-line utility for administrative tasks.

OrgaOS - Project management backend
"""

import os
import sys


def main():
    """Run administrative tasks."""

    # Development settings by default
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    # OrgaOS shortcuts
    if len(sys.argv) > 1:
        command = sys.argv[1]

        # Initial setup: migrate + demo data
        if command == 'setup':
            print("🚀 Setting up OrgaOS...")

            print("📊 Applying migrations...")
            execute_from_command_line([sys.argv[0], 'migrate'])

            print("🌱 Seeding demo data...")
            execute_from_command_line([sys.argv[0], 'seed'])

            print("✅ Setup complete!")
            return

        # Wipe everything and reseed
        elif command == 'reset':
            confirm = input("⚠️  This will delete ALL data. Continue? (y/N): ")
            if confirm.lower() == 'y':
                print("🗑️  Resetting database...")
                execute_from_command_line([sys.argv[0], 'clean_database', '--force'])
                execute_from_command_line([sys.argv[0], 'seed'])
                print("✅ Reset complete!")
            return

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
