# Catalog repositories and the PostgreSQL connection pool
