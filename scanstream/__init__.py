"""Live scan status client for a server-pushed event stream."""
