"""SHA-256 hashing of files."""