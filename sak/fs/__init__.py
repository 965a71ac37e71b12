"""Directory listing, temporary and configuration paths, and ZIP extraction."""