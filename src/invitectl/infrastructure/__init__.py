"""Infrastructure layer — store, repositories, caches, and the tracker."""
