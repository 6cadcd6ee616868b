"""HTTP API exposing schedule generation as a server-sent event stream."""
