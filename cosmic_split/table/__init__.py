"""Table-level parsing: tokenizer, alignment repair and the DataFrame view."""
