"""Test doubles and data builders."""
