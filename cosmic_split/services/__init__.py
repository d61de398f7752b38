"""Split pipeline services: synthesis, naming, uniqueness, de-duplication and rounds."""
