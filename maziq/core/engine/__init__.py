"""Engine — dependency resolution, detection, execution and orchestration."""
