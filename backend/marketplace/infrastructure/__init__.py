"""Infrastructure — database sessions, logging, credentials, identity, file storage."""
