"""Use Your Benefits - credit card statement credit tracker."""
