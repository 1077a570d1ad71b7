#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from journal_app.config.loader import ConfigLoader  # noqa: E402
from journal_app.config.settings import SettingsStore  # noqa: E402
from journal_app.config.validation import ConfigValidator  # noqa: E402
from journal_app.errors import ConfigurationError  # noqa: E402


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)
    print(f"🔍 Validating journal configuration in {loader.config_dir}...")

    all_valid = True

    try:
        merged = loader.merge_config()
        issues = ConfigValidator.validate_config(merged)
        if issues:
            print(f"❌ Found {len(issues)} validation errors:")
            for issue in issues:
                print(f"  • {issue.field}: {issue.message} (value: {issue.value})")
            all_valid = False
        else:
            print(f"✅ {loader.config_file.name} is valid")
    except ConfigurationError as e:
        print(f"❌ {e}")
        all_valid = False

    if all_valid:
        config = loader.load()
        settings_path = loader.config_dir / config.settings.settings_file
        try:
            settings = SettingsStore(config.settings, path=settings_path).get()
            print(f"✅ Account settings: capital={settings.total_capital} "
                  f"risk={settings.risk_percent}")
        except ConfigurationError as e:
            print(f"❌ {settings_path.name}: {e}")
            all_valid = False

    print("\n" + "=" * 50)
    if all_valid:
        print("🎉 All configuration validations passed!")
        return 0
    print("💥 Some configuration validations failed!")
    return 1


if __name__ == "__main__":
    sys.exit(main())
