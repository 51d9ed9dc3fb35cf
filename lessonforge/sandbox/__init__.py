from lessonforge.sandbox.loader import LoadResult, SandboxLoader

sandbox_loader = SandboxLoader()
