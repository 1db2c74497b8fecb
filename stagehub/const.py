STAGE_RECORD_TYPE = 'Stage'
UNKNOWN_STAGE_NAME = 'Unknown Stage'
UNNAMED_PIPELINE_NAME = 'Unnamed Pipeline'

# build listing windows used while correlating a run with its build
BUILD_ID_LOOKUP_TOP = 100
FALLBACK_BUILD_WINDOW = 50
