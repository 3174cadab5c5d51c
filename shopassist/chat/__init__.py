"""Product Q&A assistant: catalog retrieval plus a structured LLM answer."""
