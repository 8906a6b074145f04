"""
VeoBatch Services

- video_generation: Veo client (submission, polling, download)
- batch: sequential job queue driving the client
"""
