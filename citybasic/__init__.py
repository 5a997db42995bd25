"""CityBasic API service."""
