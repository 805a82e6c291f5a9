#!/usr/bin/env python3
"""Simple script to verify config.example.yaml structure without the app installed."""

import yaml
from pathlib import Path

KNOWN_SECTIONS = {
    'broker': dict,
    'email': dict,
    'branding': dict,
    'notifications': dict,
    'logging': dict,
}

DURATION_KEYS = ['connect_retry_delay', 'recovery_interval', 'heartbeat', 'poll_interval']


def verify_config_structure(config_file=Path("config.example.yaml")):
    """Verify a worker config file has the expected structure."""
    if not config_file.exists():
        print(f"✗ {config_file} not found")
        return False

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"✗ Failed to parse {config_file}: {e}")
        return False

    errors = []

    if not isinstance(config, dict):
        print(f"✗ {config_file} must contain a mapping at the top level")
        return False

    for key in config:
        if key not in KNOWN_SECTIONS:
            errors.append(f"Unknown top-level key: {key}")

    for key, expected_type in KNOWN_SECTIONS.items():
        if key in config and not isinstance(config[key], expected_type):
            errors.append(f"'{key}' must be of type {expected_type.__name__}")

    broker = config.get('broker') if isinstance(config.get('broker'), dict) else {}
    attempts = broker.get('max_connect_attempts', 20)
    if not isinstance(attempts, int) or attempts < 1:
        errors.append("broker.max_connect_attempts must be a positive integer")

    for key in DURATION_KEYS:
        if key in broker and not isinstance(broker[key], str):
            errors.append(f"broker.{key} must be a duration string such as '3s'")

    if 'requeue_on_delivery_failure' in broker and not isinstance(broker['requeue_on_delivery_failure'], bool):
        errors.append("broker.requeue_on_delivery_failure must be true or false")

    branding = config.get('branding') if isinstance(config.get('branding'), dict) else {}
    backend_url = branding.get('backend_url', 'http://localhost:8080')
    if not str(backend_url).startswith(('http://', 'https://')):
        errors.append("branding.backend_url must start with http:// or https://")

    if errors:
        print(f"✗ {config_file} validation failed:")
        for error in errors:
            print(f"  - {error}")
        return False

    print(f"✓ {config_file} structure is valid")
    print(f"  - Connect attempts: {attempts}, retry delay: {broker.get('connect_retry_delay', '3s')}")
    print(f"  - Requeue on delivery failure: {broker.get('requeue_on_delivery_failure', False)}")
    print(f"  - Backend URL: {backend_url}")
    return True


if __name__ == "__main__":
    import sys
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("config.example.yaml")
    success = verify_config_structure(target)
    sys.exit(0 if success else 1)
