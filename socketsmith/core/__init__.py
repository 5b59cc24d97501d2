"""Core building blocks: configuration, logging, results, storage and documents."""
