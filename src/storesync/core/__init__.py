"""Core building blocks: constants, logging, errors, and configuration."""
