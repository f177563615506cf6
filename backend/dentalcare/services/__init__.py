# Services Package
# No eager imports here: dentalcare.schemas imports treatment_progress.
