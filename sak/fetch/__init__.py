"""HTTP requests with retries, resumable downloads and cookie files."""