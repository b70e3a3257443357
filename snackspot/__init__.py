"""SnackSpot Auckland - credential and session service."""
