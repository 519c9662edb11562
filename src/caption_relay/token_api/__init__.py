"""Token API: short-lived pub/sub credentials for new participants."""
