"""Policy document model."""
