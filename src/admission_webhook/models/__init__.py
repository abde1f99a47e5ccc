"""
Models package - Pydantic models for type-safe admission handling.

Defines data models for:
- AdmissionReview request/response envelopes and JSON patch operations
- Workload objects inspected by the policies (Pod, Deployment, Service)
"""
