from .dedupe import handle_dedupe, OutputMode, _dedupe_file, _print_batch_summary
