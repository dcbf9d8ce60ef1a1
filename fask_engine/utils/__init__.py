"""
Utility subpackage:
- config_loader   → YAML loader & JSON overrides
- logging_utils   → unified logger setup
"""
