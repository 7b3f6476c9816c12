"""services/ — business logic shared by routers, scheduler jobs and scripts."""
