"""HTTP client, topology query service and response models for the topology API."""