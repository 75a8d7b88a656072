"""Sample test classes used by the framework tests."""
