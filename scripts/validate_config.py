#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from relay_app.config.loader import ConfigLoader
from relay_app.config.validation import ConfigValidator


def main():
    """Main validation function."""
    print("🔍 Validating relay configuration...")

    loader = ConfigLoader.create()
    config_file = loader.config_dir / "relay.yaml"
    print(f"\n📄 Config file: {config_file} ({'found' if config_file.exists() else 'absent'})")

    try:
        config = loader.merge_config()
    except Exception as e:
        print(f"❌ Error loading configuration: {e}")
        sys.exit(1)

    errors = ConfigValidator.validate_config(config)

    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        print(f"\n❌ Configuration validation failed!")
        sys.exit(1)

    print(f"✅ Leader: @{config['leader']['username']}")
    print(f"✅ Accepted referrals: {', '.join(config['referral']['accepted_codes'])}")
    print(f"✅ Notifier: {config['notification']['method']}")
    print(f"\n🎉 Configuration validation passed!")
    sys.exit(0)


if __name__ == "__main__":
    main()
