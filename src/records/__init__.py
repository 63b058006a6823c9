"""Record store collaborators: durable storage for classified receipts."""
