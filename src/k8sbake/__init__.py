"""k8s-bake: tool acquisition for rendering Kubernetes manifests."""
