# Services operate on an SQLAlchemy Session supplied by the caller, who owns commit and rollback.
