"""Pipeline orchestration core: workspace store, runner, and API surface."""
